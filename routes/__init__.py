"""Route blueprints for the KalaSetu client."""
