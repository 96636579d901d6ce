"""Core domain package for mr-nag.

Core contains the dwell policy and the notification pipeline without any
GitLab or Slack-specific code, keeping the business logic portable.
"""
