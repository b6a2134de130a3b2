"""
Traffic Density Alerting - Storage Module

This module handles report storage and retrieval.
"""

from .database import Database

__all__ = ['Database']
