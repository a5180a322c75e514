"""Request, record, and response models."""
