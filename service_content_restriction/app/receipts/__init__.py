"""
Receipt and email extensions listing pages unlocked by a payment.
"""
