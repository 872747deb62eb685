"""MCP server exposing project memory over stdio."""
