"""Host collaborator interfaces and headless implementations."""
