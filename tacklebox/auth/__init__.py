"""Session resolution from identity-provider tokens."""
