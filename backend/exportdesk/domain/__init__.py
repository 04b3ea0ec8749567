"""Domain layer - framework-free business rules."""
