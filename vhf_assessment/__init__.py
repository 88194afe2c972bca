"""VHF returning-traveller risk assessment engine and Flask API."""
