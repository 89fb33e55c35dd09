"""Command line front end and benchmark runner for cipherbench."""
