"""Wallet-bound sessions and SNS name resolution."""
