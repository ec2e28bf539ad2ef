"""CRUD operations for library element entities using FastCRUD."""

from fastcrud import FastCRUD

from .models import LibraryElement, LibraryElementConnection

library_element_crud: FastCRUD = FastCRUD(LibraryElement)
connection_crud: FastCRUD = FastCRUD(LibraryElementConnection)
