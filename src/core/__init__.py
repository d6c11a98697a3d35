"""Core domain package for orderwatch.

Core contains order extraction, the poll cycle and the polling loop without
any IMAP or file-format specific code, keeping the business logic portable.
"""
