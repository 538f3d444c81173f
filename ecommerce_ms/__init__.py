"""
Product and order management service.
"""
