"""
Application Layer

Orchestrates domain objects and infrastructure ports.

Structure:
- commands/: enqueue and volume command handlers
- services/: playlist session engine, session registry, provider router
- interfaces/: ports for playback sinks and source providers
"""
