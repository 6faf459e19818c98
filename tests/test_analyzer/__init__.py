"""Statistics recorder and trip report tests"""
