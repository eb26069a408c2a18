# Routers module for the campaign membership API
from app.routers import campaigns
from app.routers import members
from app.routers import invitations
from app.routers import invite_links
from app.routers import join_requests
from app.routers import profiles
from app.routers import admin
