"""Student feedback portal: models, services and API client."""
