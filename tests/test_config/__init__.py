"""Configuration loading tests"""
