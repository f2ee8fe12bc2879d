"""Unit tests for confluence_client.models module."""

from mdpublish.confluence_client.models import PageInfo, RemoteAttachment


class TestPageInfo:
    """Test cases for PageInfo."""

    def test_from_api_reads_nested_fields(self):
        page = PageInfo.from_api({
            'id': 123,
            'title': 'Guide',
            'space': {'key': 'DOCS'},
            'version': {'number': 5},
            'ancestors': [{'id': '1', 'title': 'Root'}],
            '_links': {'webui': '/spaces/DOCS/pages/123/Guide'},
        })

        assert page.page_id == '123'
        assert page.version == 5
        assert page.ancestor_titles == ['Root']

    def test_url_uses_webui_link(self):
        page = PageInfo('123', 'Guide', 'DOCS', 5, link='/spaces/DOCS/pages/123/Guide')
        assert page.url('https://example.com/wiki/') == 'https://example.com/wiki/spaces/DOCS/pages/123/Guide'

    def test_url_falls_back_to_page_id(self):
        page = PageInfo('123', 'Guide', 'DOCS', 5)
        assert page.url('https://example.com') == 'https://example.com/pages/viewpage.action?pageId=123'


class TestRemoteAttachment:
    """Test cases for RemoteAttachment."""

    def test_from_api_without_metadata(self):
        attachment = RemoteAttachment.from_api({'id': 'att1', 'title': 'a.png'})
        assert attachment.comment == ''
        assert attachment.link == ''
