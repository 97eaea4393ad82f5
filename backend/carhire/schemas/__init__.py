"""Pydantic schemas for the CarHire API."""

from carhire.schemas.auth import *
from carhire.schemas.booking import *
from carhire.schemas.car import *
from carhire.schemas.activity import *
