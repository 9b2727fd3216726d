"""
PDF Dictionary Keys and Name Constants
"""

# Page Dictionary Keys
KEY_RESOURCES = "/Resources"
KEY_PARENT = "/Parent"

# Resource name prefix for fonts added by this service
REPLACEMENT_FONT_PREFIX = "PhR"
