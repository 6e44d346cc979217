"""DevForecast backend: weather, GitHub and AI insight proxy with caching."""
