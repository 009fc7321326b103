"""
Service modules composing the VAT engines with record stores.
"""
