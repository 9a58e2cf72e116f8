"""
Application Layer

Orchestrates the domain and the infrastructure ports.

Structure:
- interfaces/: Port interfaces for infrastructure adapters
- services/: Queue facade, catalog expansion, temp files and the playback engine
"""
