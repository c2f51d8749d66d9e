"""
Family Activities: conversion and review of scraped family-activity listings.
"""

__version__ = "0.1.0"
