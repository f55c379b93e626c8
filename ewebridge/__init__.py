"""
ewebridge - device adapters exposing vendor appliances as home-automation accessories
"""

__version__ = "0.1.0"
__logo__ = "🌉"
