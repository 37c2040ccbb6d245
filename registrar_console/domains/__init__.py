"""Domain layer (markup codec, form binding, EPP objects and errors).

Domain modules should not depend on UI or on a particular transport.
"""
