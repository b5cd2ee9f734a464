"""Application services built on the CRUD layer"""
