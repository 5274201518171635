"""Domain layer: path rules, CFG content rules, recipe model.

This layer depends only on stdlib, pydantic and ruamel.yaml.
It must never touch the filesystem or the network, and must never import
from services, infrastructure, commands, or config.
"""
