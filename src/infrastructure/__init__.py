"""
infrastructure - Concrete implementations of domain ports.

Contains all vendor-specific code: MongoDB, Redis, LLM providers, config.
Depends on domain/ only (implements ports). Never imported by application/.
"""
