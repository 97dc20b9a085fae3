"""Shared configuration and exceptions."""
