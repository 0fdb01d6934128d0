"""ProjectHub service layer and configuration."""
