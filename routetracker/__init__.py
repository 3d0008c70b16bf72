"""Live vehicle tracking with upcoming-stop and forward-route prediction."""
