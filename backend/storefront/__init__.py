"""
Storefront - Point of sale + WhatsApp catalog ordering backend
"""
__version__ = "1.0.0"
