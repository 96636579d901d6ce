"""Adapters binding the core pipeline to GitLab, Slack and the console."""
