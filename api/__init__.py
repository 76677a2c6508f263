"""
API layer for the Cube League Draft Bot

HTTP client for the PostgREST store. The draft event stream server lives in
api.draft_stream and is imported directly by the bot.
"""
from .client import APIClient, get_api_client, get_global_client, cleanup_global_client, in_list

__all__ = ['APIClient', 'get_api_client', 'get_global_client', 'cleanup_global_client', 'in_list']
