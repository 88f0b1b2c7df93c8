"""대체 소스 응답 자산 (Semantic Scholar / CrossRef / arXiv)"""

import json

SEMANTIC_SCHOLAR_PAYLOAD = json.dumps({
    "total": 2,
    "offset": 0,
    "data": [
        {
            "paperId": "204e3073870fae3d05bcbc2f6a8e263d9b72e776",
            "title": "Attention is All you Need",
            "authors": [{"authorId": "40348417", "name": "Ashish Vaswani"}, {"authorId": "1846258", "name": "Noam Shazeer"}],
            "venue": "Neural Information Processing Systems",
            "journal": {"name": "Advances in Neural Information Processing Systems"},
            "year": 2017,
            "abstract": "The dominant sequence transduction models are based on complex recurrent networks.",
            "citationCount": 120000,
            "url": "https://www.semanticscholar.org/paper/204e3073870fae3d05bcbc2f6a8e263d9b72e776",
            "externalIds": {"DOI": "10.48550/arXiv.1706.03762", "ArXiv": "1706.03762"},
        },
        {
            "paperId": "deadbeef",
            "title": "",
            "authors": [],
        },
    ],
})

CROSSREF_PAYLOAD = json.dumps({
    "status": "ok",
    "message-type": "work-list",
    "message": {
        "items": [
            {
                "DOI": "10.1109/CVPR.2016.90",
                "title": ["Deep Residual Learning for Image Recognition"],
                "author": [
                    {"given": "Kaiming", "family": "He"},
                    {"given": "Xiangyu", "family": "Zhang"},
                ],
                "container-title": ["2016 IEEE Conference on Computer Vision and Pattern Recognition (CVPR)"],
                "issued": {"date-parts": [[2016, 6]]},
                "URL": "http://dx.doi.org/10.1109/cvpr.2016.90",
                "is-referenced-by-count": 180000,
                "abstract": "<jats:p>Deeper neural networks are more difficult to train.</jats:p>",
            },
            {
                "DOI": "10.0000/untitled",
                "title": [],
            },
        ]
    },
})

ARXIV_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom" xmlns:arxiv="http://arxiv.org/schemas/atom">
  <title type="html">ArXiv Query: search_query=all:graph neural networks</title>
  <entry>
    <id>http://arxiv.org/abs/1812.08434v6</id>
    <published>2018-12-20T15:04:38Z</published>
    <title>Graph Neural Networks:
      A Review of Methods and Applications</title>
    <summary>  Lots of learning tasks require dealing with graph data.  </summary>
    <author><name>Jie Zhou</name></author>
    <author><name>Ganqu Cui</name></author>
    <arxiv:doi>10.1016/j.aiopen.2021.01.001</arxiv:doi>
    <arxiv:journal_ref>AI Open 2020</arxiv:journal_ref>
  </entry>
  <entry>
    <id>http://arxiv.org/abs/2101.00001v1</id>
    <published>2021-01-01T00:00:00Z</published>
    <title>A preprint without journal reference</title>
    <summary>Short abstract text for testing.</summary>
    <author><name>Jane Doe</name></author>
  </entry>
</feed>
"""
