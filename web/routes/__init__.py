"""
API 라우트 패키지

각 기능별 라우터 모듈:
- health: 헬스 체크
- companies: 회사 / 계정 등록, 다음 전표 번호
- vouchers: 전표 생성 / 수정 / 삭제
- vehicles: 잔액, 원장, 대사, 계정 병합
- reports: 시산표, 일계표, 회수 목록
"""
