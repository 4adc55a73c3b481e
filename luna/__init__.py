"""
Luna Dream API.
"""
