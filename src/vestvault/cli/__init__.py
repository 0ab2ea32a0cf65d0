"""vestvault command-line interface."""
