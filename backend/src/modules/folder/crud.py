"""CRUD operations for folder entities using FastCRUD."""

from fastcrud import FastCRUD

from .models import Folder

folder_crud: FastCRUD = FastCRUD(Folder)
