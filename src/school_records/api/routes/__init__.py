from . import grading, health, identifiers
