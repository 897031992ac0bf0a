"""
Repository package for data access layers.

`movie_reviews.repositories.reviews` holds the review storage adapters; the
`REVIEWS_BACKEND` setting (`sql` | `memory`) picks the one served to routes.
"""
