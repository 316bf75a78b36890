"""CLI support modules for strand: exit codes, error handling and notices."""
