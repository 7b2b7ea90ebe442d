from sqladmin import ModelView

from valida.generation.models import Generation
from valida.profile.models import Profile


class ProfileAdmin(ModelView, model=Profile):
    name = "Profile"
    name_plural = "Profiles"
    icon = "fa-solid fa-user"

    column_list = [
        Profile.email,
        Profile.name,
        Profile.is_admin,
        Profile.is_banned,
        Profile.id,
        Profile.created_at,
    ]
    column_searchable_list = [Profile.email, Profile.name, Profile.id]
    column_sortable_list = [Profile.email, Profile.created_at, Profile.is_banned]
    column_default_sort = [(Profile.created_at, True)]

    # Profiles are created by sign-in or provisioning, never from the panel
    can_create = False
    can_delete = False
    form_columns = [Profile.name, Profile.is_admin, Profile.is_banned]


class GenerationAdmin(ModelView, model=Generation):
    name = "Generation"
    name_plural = "Generations"
    icon = "fa-solid fa-wand-magic-sparkles"

    column_list = [
        Generation.product_name,
        Generation.category,
        Generation.status,
        Generation.user_id,
        Generation.image_url,
        Generation.created_at,
        Generation.updated_at,
    ]
    column_searchable_list = [
        Generation.product_name,
        Generation.category,
        Generation.user_id,
    ]
    column_sortable_list = [
        Generation.created_at,
        Generation.updated_at,
        Generation.status,
        Generation.category,
    ]
    column_default_sort = [(Generation.created_at, True)]
    column_details_exclude_list = [Generation.image_base64]

    can_create = False
    can_edit = False
