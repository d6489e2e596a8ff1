"""Application services orchestrating the domain and repositories."""
