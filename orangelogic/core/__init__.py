"""
Core Client Logic
=================

This package contains the OrangeLogic API transport, token lifecycle
management, search query construction and the session stores that let a
token outlive a single client.
"""
