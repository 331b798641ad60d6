"""Infrastructure layer: settings, logging and event publishing"""
