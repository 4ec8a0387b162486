"""Freight AI: generative-model data source for logistics facts."""
