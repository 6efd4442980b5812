"""Configuration for the upload broker and its infrastructure."""
