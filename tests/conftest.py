"""Pytest configuration and shared fixtures."""

import os

import pytest

from post_exporter.models.publication import PostRef, PublicationRef


@pytest.fixture(autouse=True)
def set_test_env() -> None:
    """Set test environment variables."""
    os.environ.setdefault("LOG_JSON", "false")
    os.environ.setdefault("EXPORT_FETCH_TIMEOUT_SECONDS", "5")


@pytest.fixture
def sample_publication() -> PublicationRef:
    """샘플 퍼블리케이션."""
    return PublicationRef(
        url="https://example.substack.com",
        title="Example Letters",
        author="Jane Writer",
        author_cover_url="https://cdn.example.com/jane.png",
    )


@pytest.fixture
def sample_posts() -> list[PostRef]:
    """샘플 포스트 3개 (발행일 오름차순: p1, p2, p3)."""
    return [
        PostRef(
            id="p1",
            title="First Post",
            published_at="2024-01-01T09:00:00Z",
            url="https://example.substack.com/p/first-post",
        ),
        PostRef(
            id="p2",
            title="Second Post",
            published_at="2024-02-01T09:00:00Z",
            url="https://example.substack.com/p/second-post",
        ),
        PostRef(
            id="p3",
            title="Third Post",
            published_at="2024-03-01T09:00:00Z",
            url="https://example.substack.com/p/third-post",
        ),
    ]


@pytest.fixture
def sample_post_html() -> str:
    """각주, 이미지, 목록이 포함된 포스트 HTML."""
    return """
    <html>
      <head>
        <meta property="og:title" content="On Writing Long Posts">
        <meta property="og:description" content="Notes from a year of essays">
        <meta name="description" content="A short summary.">
        <meta property="article:published_time" content="2024-05-01T12:00:00Z">
        <meta property="article:tag" content="writing">
        <meta property="article:tag" content="craft">
        <meta name="author" content="Jane Writer">
      </head>
      <body>
        <nav>Home | Archive</nav>
        <article>
          <h1>On Writing Long Posts</h1>
          <div class="post-meta">6 min read</div>
          <div class="available-content">
            <p>Long posts need structure.<a class="footnote-anchor" href="#footnote-1" id="footnote-anchor-1">1</a></p>
            <h2>Outline first</h2>
            <ul><li>Pick a thesis</li><li>Draft sections</li></ul>
            <blockquote><p>Write drunk, edit sober.</p></blockquote>
            <figure>
              <img src="https://cdn.example.com/desk.png" alt="A desk">
              <figcaption>My writing desk</figcaption>
            </figure>
            <script>trackPageView();</script>
            <div class="footnote">
              <a class="footnote-number" href="#footnote-anchor-1" id="footnote-1">1</a>
              <div class="footnote-content"><p>Structure is a kindness to readers.</p></div>
            </div>
          </div>
        </article>
        <footer>Subscribe now</footer>
      </body>
    </html>
    """
