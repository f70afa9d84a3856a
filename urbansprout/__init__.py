"""UrbanSprout realtime notifications and discount lifecycle service."""
