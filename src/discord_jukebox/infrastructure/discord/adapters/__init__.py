"""Discord adapters implementing the application's voice ports."""
