"""Core domain package for meetwatch.

Core contains matching, meeting-window detection, duplicate suppression and
the job orchestrators without any Google or Slack specific code, keeping the
business logic portable and testable without network access.
"""
