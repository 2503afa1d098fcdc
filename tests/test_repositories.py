import pytest

from markova.core.domain.entities import (
    BrandKit, Campaign, CampaignPost, CampaignReel, CampaignStory, Plan, PlanFeatures, User, VisualPrefs
)
from markova.core.domain.errors import NotFoundError, ValidationError
from markova.adapters.persistence.models import CampaignPostRow

from conftest import make_posts


def campaign_for(brand, user_id="user-1", post_numbers=(1, 2, 3), created_at=None):
    posts = [CampaignPost(**{**make_posts(1)[0], "post_number": number, "title": f"Post {number}"})
             for number in post_numbers]
    campaign = Campaign(
        user_id=user_id, brand_id=brand.id, title="Launch", objective="Sales", audience="Students",
        visual_prefs=VisualPrefs(custom_text="Sale"), posts=posts,
        stories=[CampaignStory(story_number=2, content="b", interactive_element="poll"),
                 CampaignStory(story_number=1, content="a", interactive_element="quiz")],
        reels=[CampaignReel(reel_number=1, hook="Wait!", script="...", cta="Buy")]
    )
    if created_at:
        campaign.created_at = created_at
    return campaign


def test_brand_kit_round_trip(repositories, brand):
    stored = repositories.brands.get_by_id(brand.id)
    assert stored == brand
    assert repositories.brands.get_by_id("missing") is None


def test_list_filters_and_orders_newest_first(repositories, brand):
    older = BrandKit(user_id="user-1", name="Old", primary_color="#000", secondary_color="#fff",
                     font_family="Cairo", tone_of_voice="Calm", industry="Tea",
                     created_at="2020-01-01T00:00:00+00:00")
    other = BrandKit(user_id="user-2", name="Other", primary_color="#000", secondary_color="#fff",
                     font_family="Cairo", tone_of_voice="Calm", industry="Tea")
    repositories.brands.save(older)
    repositories.brands.save(other)

    names = [kit.name for kit in repositories.brands.list(user_id="user-1")]
    assert names == ["Nile Coffee", "Old"]
    with pytest.raises(ValueError):
        repositories.brands.list(owner="user-1")


def test_update_and_delete(repositories, brand):
    brand.tone_of_voice = "Playful"
    repositories.brands.update(brand)
    assert repositories.brands.get_by_id(brand.id).tone_of_voice == "Playful"

    ghost = BrandKit(user_id="u", name="Ghost", primary_color="#000", secondary_color="#fff",
                     font_family="Cairo", tone_of_voice="Calm", industry="Tea")
    with pytest.raises(NotFoundError):
        repositories.brands.update(ghost)

    repositories.brands.delete(brand.id)
    repositories.brands.delete(brand.id)
    assert repositories.brands.get_by_id(brand.id) is None


def test_campaign_children_are_ordered(repositories, brand):
    campaign = campaign_for(brand, post_numbers=(3, 1, 2))
    repositories.campaigns.save(campaign)

    stored = repositories.campaigns.get_by_id(campaign.id)
    assert [post.post_number for post in stored.posts] == [1, 2, 3]
    assert [story.story_number for story in stored.stories] == [1, 2]
    assert stored.reels[0].hook == "Wait!"
    assert stored.visual_prefs.custom_text == "Sale"


def test_update_post_touches_one_row(repositories, brand):
    campaign = campaign_for(brand)
    repositories.campaigns.save(campaign)
    post = campaign.posts[1]
    post.image_url = "data:image/png;base64,AAAA"

    repositories.campaigns.update_post(campaign.id, post)

    stored = repositories.campaigns.get_by_id(campaign.id)
    assert [p.image_url for p in stored.posts] == [None, "data:image/png;base64,AAAA", None]
    with pytest.raises(NotFoundError):
        repositories.campaigns.update_post("other-campaign", post)


def test_deleting_campaign_removes_children(repositories, database, brand):
    campaign = campaign_for(brand)
    repositories.campaigns.save(campaign)

    repositories.campaigns.delete(campaign.id)

    assert repositories.campaigns.get_by_id(campaign.id) is None
    with database.session_scope() as session:
        assert session.query(CampaignPostRow).count() == 0


def test_plans_ordered_by_price(repositories):
    repositories.plans.save(Plan(name="Pro", price_monthly=49, price_yearly=490,
                                 features=PlanFeatures(brands_limit=5, campaigns_limit=100)))
    repositories.plans.save(Plan(name="Free", price_monthly=0, price_yearly=0))

    plans = repositories.plans.list()
    assert [plan.name for plan in plans] == ["Free", "Pro"]
    assert plans[1].features.brands_limit == 5


def test_users_round_trip(repositories):
    user = User(name="Sara", email="sara@example.com", role="admin")
    repositories.users.save(user)
    assert repositories.users.get_by_id(user.id).role == "admin"


def test_constraint_violations_become_validation_errors(repositories):
    first = User(name="Amal", email="a@x.io")
    repositories.users.save(first)

    with pytest.raises(ValidationError):
        repositories.users.save(User(name="Other", email="a@x.io"))
    with pytest.raises(ValidationError):
        repositories.users.save(User(id=first.id, name="Copy", email="c@x.io"))

    second = User(name="Basma", email="b@x.io")
    repositories.users.save(second)
    second.email = "a@x.io"
    with pytest.raises(ValidationError):
        repositories.users.update(second)
    assert repositories.users.get_by_id(second.id).email == "b@x.io"
