"""Secure Storage Meta information.
   Secure Storage keeps sensitive byte blobs encrypted at rest.
"""
__title__ = 'secure_storage'
__description__ = (
   'Secure Storage keeps sensitive byte blobs encrypted at rest '
   'under per-record AES-256-GCM keys.'
)
__version__ = '0.1.0'
__copyright__ = 'Copyright (c) 2023 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/phenobarbital/secure-storage'
