"""
ccswitch - automatic switching between multiple model API channels
"""
__version__ = "0.1.0"
