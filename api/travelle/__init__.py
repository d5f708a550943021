"""Travelle API - travel catalog, collections, trip lists and transactional email"""
