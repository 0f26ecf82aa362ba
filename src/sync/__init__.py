# src/sync/__init__.py - v1
