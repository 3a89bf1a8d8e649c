"""Web interface hosting a block editor workspace."""
