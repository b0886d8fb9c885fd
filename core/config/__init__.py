# ============================================================================
# CONFIGURATION MODULE
# ============================================================================
# STATUS: Core - Configuration
# PURPOSE: Centralized configuration management
# CREATED: 05 OCT 2026
# ============================================================================
"""
Configuration Module

Provides centralized, environment-sourced configuration for the consumer.
"""

from core.config.settings import (
    ProducerConfig,
    StoreConfig,
    IngestConfig,
    ConsumerConfig,
    get_config,
    reset_config,
    parse_timestamp,
)

__all__ = [
    "ProducerConfig",
    "StoreConfig",
    "IngestConfig",
    "ConsumerConfig",
    "get_config",
    "reset_config",
    "parse_timestamp",
]
