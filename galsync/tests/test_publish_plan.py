"""Tests for PublishPlan and SyncAction."""

import pytest

from galsync.publish_plan import PublishPlan, SyncAction


@pytest.fixture
def plan():
    return PublishPlan(
        prefix='galleries/',
        to_upload=(
            SyncAction.upload('galleries/a.jpg', '/ws/a.jpg', 100, 'image/jpeg'),
            SyncAction.upload('galleries/galleries.json', '/ws/galleries.json', 20, 'application/json'),
        ),
        to_delete=('galleries/old.jpg',),
        unchanged_count=3,
        total_files=5,
    )


class TestPublishPlan:
    """Tests for PublishPlan."""

    def test_actions_order(self, plan):
        actions = plan.actions

        assert [a.kind for a in actions] == ['upload', 'upload', 'delete']
        assert actions[-1].remote_key == 'galleries/old.jpg'
        assert plan.total_actions == 3
        assert plan.upload_bytes == 120
        assert not plan.is_empty

    def test_unique_ids(self):
        first = PublishPlan(prefix='galleries/')
        second = PublishPlan(prefix='galleries/')

        assert first.plan_id != second.plan_id
        assert first.is_empty

    def test_rejects_empty_prefix(self):
        with pytest.raises(ValueError):
            PublishPlan(prefix='')

    def test_rejects_delete_outside_prefix(self):
        with pytest.raises(ValueError):
            PublishPlan(prefix='galleries/', to_delete=('index.html',))

    def test_rejects_delete_in_upload_list(self):
        with pytest.raises(ValueError):
            PublishPlan(prefix='galleries/', to_upload=(SyncAction.delete('galleries/a.jpg'),))

    def test_to_dict(self, plan):
        data = plan.to_dict()

        assert data['planId'] == plan.plan_id
        assert data['toDelete'] == ['galleries/old.jpg']
        assert data['unchanged'] == 3
        assert data['totalFiles'] == 5
        assert data['toUpload'][0] == {
            'kind': 'upload',
            'remoteKey': 'galleries/a.jpg',
            'localPath': '/ws/a.jpg',
            'sizeBytes': 100,
            'contentType': 'image/jpeg',
        }

    def test_from_dict(self, plan):
        restored = PublishPlan.from_dict(plan.to_dict())

        assert restored == plan
