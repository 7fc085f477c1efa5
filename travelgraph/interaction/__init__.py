"""
User-interaction sub-machine.

Asks the user for missing trip facts, suspends until they answer, extracts
the facts from the answer and loops until the hard-required fields are known.
"""
