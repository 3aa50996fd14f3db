"""
Channel selection, health probing, dispatch and response normalization
"""
