# bloodbanks/utils.py
"""
Helpers shared by the bulk import commands
"""
import os

import pandas as pd

from algorithms.haversine import GeoPoint
from donorlink.errors import InvalidCoordinate


def read_table(path):
    """Load a CSV or Excel sheet into a DataFrame (Excel needs openpyxl)."""
    _, extension = os.path.splitext(path)
    if extension.lower() == '.csv':
        return pd.read_csv(path, dtype=str)
    return pd.read_excel(path, dtype=str)


def cell(row, column, default=''):
    """Stripped string value of a cell, or default when the column is missing/empty."""
    if column not in row or pd.isna(row[column]):
        return default
    return str(row[column]).strip()


def row_coordinates(row):
    """
    (latitude, longitude) for a row, or (None, None) when either value is
    missing. Out-of-range values raise InvalidCoordinate.
    """
    latitude = row['latitude'] if 'latitude' in row else None
    longitude = row['longitude'] if 'longitude' in row else None
    if latitude is None or longitude is None or pd.isna(latitude) or pd.isna(longitude):
        return None, None

    try:
        latitude, longitude = float(latitude), float(longitude)
    except ValueError:
        raise InvalidCoordinate(detail=f"Cannot read coordinates {latitude!r}, {longitude!r}")

    point = GeoPoint(longitude, latitude)
    return point.latitude, point.longitude
