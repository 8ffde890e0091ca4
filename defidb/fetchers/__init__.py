"""Runnable fetch jobs, one module per data kind."""
