"""Google Scholar 결과 페이지 자산

- 실제 페이지 구조(div.gs_r / h3.gs_rt / div.gs_a / div.gs_rs / div.gs_fl)만 축약해서 유지
"""

_BLOCK_ATTENTION = """
<div class="gs_r gs_or gs_scl" data-cid="a1">
  <div class="gs_ri">
    <h3 class="gs_rt"><span class="gs_ctg2">[PDF]</span> <a href="https://arxiv.org/abs/1706.03762">Attention is all you need</a></h3>
    <div class="gs_a">A Vaswani, N Shazeer, N Parmar - Advances in neural information processing systems, 2017 - proceedings.neurips.cc</div>
    <div class="gs_rs">The dominant sequence transduction models are based on complex recurrent or convolutional neural networks.</div>
    <div class="gs_fl"><a href="/scholar?cites=1">Cited by 120000</a> <a href="/scholar?q=related:a1">Related articles</a></div>
  </div>
</div>
"""

_BLOCK_RESNET = """
<div class="gs_r gs_or gs_scl" data-cid="b2">
  <div class="gs_ri">
    <h3 class="gs_rt"><a href="https://doi.org/10.1109/CVPR.2016.90">Deep residual learning for image recognition</a></h3>
    <div class="gs_a">K He, X Zhang, S Ren, J Sun - Proceedings of the IEEE conference on computer vision and pattern recognition, 2016 - openaccess.thecvf.com</div>
    <div class="gs_rs">Deeper neural networks are more difficult to train. We present a residual learning framework.</div>
    <div class="gs_fl"><a href="/scholar?cites=2">Cited by 200000</a></div>
  </div>
</div>
"""

_BLOCK_GNN = """
<div class="gs_r gs_or gs_scl" data-cid="c3">
  <div class="gs_ri">
    <h3 class="gs_rt"><a href="https://www.sciencedirect.com/science/article/pii/S2666651021000012">Graph neural networks: A review of methods and applications</a></h3>
    <div class="gs_a">J Zhou, G Cui, S Hu - AI open, 2020 - Elsevier</div>
    <div class="gs_fl"><a href="/scholar?cites=3">Cited by 5000</a></div>
  </div>
</div>
"""

# 제목 없는 블록 (건너뛰어야 함)
_BLOCK_NO_TITLE = """
<div class="gs_r gs_or gs_scl" data-cid="x9">
  <div class="gs_ri">
    <div class="gs_a">Anonymous - Unknown venue, 2019</div>
  </div>
</div>
"""

RESULTS_PAGE = f"""<!doctype html>
<html><head><title>Google Scholar</title></head>
<body><div id="gs_res_ccl_mid">{_BLOCK_ATTENTION}{_BLOCK_RESNET}{_BLOCK_GNN}</div></body></html>
"""

PARTIAL_PAGE = f"""<!doctype html>
<html><head><title>Google Scholar</title></head>
<body><div id="gs_res_ccl_mid">{_BLOCK_ATTENTION}{_BLOCK_NO_TITLE}{_BLOCK_GNN}</div></body></html>
"""

# 결과 블록 구조가 바뀐 페이지 (링크 텍스트만 남음)
HEURISTIC_PAGE = """<!doctype html>
<html><body>
  <a href="/">Home</a>
  <a href="/scholar">Search</a>
  <a href="https://example.org/resnet">Deep residual learning for image recognition</a>
  <a href="/scholar?cites=9">Cited by 5</a>
  <a href="https://example.org/gnn">Graph neural networks in practice</a>
</body></html>
"""

NO_RESULTS_PAGE = """<!doctype html>
<html><body>
  <div id="gs_res_ccl_mid">
    <p>Your search - <b>qwxzv</b> - did not match any articles.</p>
  </div>
</body></html>
"""

BLOCK_PAGE = """<!doctype html>
<html><body>
  <h1>Sorry...</h1>
  <p>Our systems have detected unusual traffic from your computer network.</p>
</body></html>
"""

UNPARSEABLE_PAGE = """<!doctype html>
<html><body><div>Short</div><a href="/">Home</a></body></html>
"""
