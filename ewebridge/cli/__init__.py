"""CLI module for ewebridge."""
