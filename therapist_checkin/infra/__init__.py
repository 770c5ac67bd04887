"""
Infrastructure adapters: database, repositories, notification transports, Redis.
"""
