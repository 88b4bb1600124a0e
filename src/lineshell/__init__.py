"""An interactive shell with its own line editor and tab completion."""
