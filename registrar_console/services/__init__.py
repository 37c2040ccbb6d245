"""Application services layer (EPP command channel and login session).

Services coordinate work across domains and infrastructure. They should avoid UI concerns.
"""
