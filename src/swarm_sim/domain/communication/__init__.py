"""Communication subsystem (shared channel & protocols on top of it).

Defines the bounded-integer channel, the packed coordinate codec, and the
base registry, threat signal and explorer election that live in its slots.
"""
