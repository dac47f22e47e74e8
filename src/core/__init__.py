"""Core domain package for kfeed.

Core contains mention scanning, reply-chain propagation and the notification
channel without any HTTP or storage-specific code, keeping the logic portable.
"""
