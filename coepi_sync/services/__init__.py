"""
Services: identifier derivation, matching, reconciliation and report submission
"""
