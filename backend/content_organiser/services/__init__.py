"""
Business services: authentication, identity provider, content gateway and cache
"""
